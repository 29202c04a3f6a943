"""
Role allow-lists per operation. Routes attach one of the gates below as a dependency;
a caller whose role is not listed gets 403 before the handler runs.
"""
from weather_api.api.deps import RoleGate
from weather_api.models.user import Role

READ_READINGS_ROLES = frozenset({Role.admin, Role.student, Role.teacher})
CREATE_READINGS_ROLES = frozenset({Role.admin, Role.teacher, Role.sensor})
MODIFY_READINGS_ROLES = frozenset({Role.admin, Role.teacher})
UPDATE_PRECIPITATION_ROLES = frozenset({Role.admin})
MANAGE_USERS_ROLES = frozenset({Role.admin, Role.teacher})
BULK_USER_LIFECYCLE_ROLES = frozenset({Role.admin})

READ_READINGS_DENIED = "The user does not have permission to get weather data readings."
MODIFY_READINGS_DENIED = "The user does not have permission to modify readings."
USERS_DENIED = "The user does not have permission to access user information."

can_read_readings = RoleGate(READ_READINGS_ROLES, READ_READINGS_DENIED)
can_create_readings = RoleGate(CREATE_READINGS_ROLES, MODIFY_READINGS_DENIED)
can_modify_readings = RoleGate(MODIFY_READINGS_ROLES, MODIFY_READINGS_DENIED)
can_update_precipitation = RoleGate(UPDATE_PRECIPITATION_ROLES, MODIFY_READINGS_DENIED)
can_manage_users = RoleGate(MANAGE_USERS_ROLES, USERS_DENIED)
can_run_user_lifecycle = RoleGate(BULK_USER_LIFECYCLE_ROLES, USERS_DENIED)
