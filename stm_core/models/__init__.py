from .relationships import (
    project_user_association as project_user_association,
    project_task_association as project_task_association,
)
from .projects import Project as Project
from .tasks import Task as Task
