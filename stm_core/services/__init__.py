from .permissions import PermissionService as PermissionService
from .tasks import TaskService as TaskService
from .projects import (
    ProjectService as ProjectService,
    build_services as build_services,
)
