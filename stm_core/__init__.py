"""
stm_core: server of the Simple Task Manager.

A mapping job is split into tasks; users join projects, assign themselves to
tasks and report progress as process points. Every API call runs inside one
request-scoped transaction shared by the permission, task and project
services.

Data model: Project (owner, members, task ids), Task (process points,
geometry, assigned user). Users are plain ids taken from the caller's token.
"""
