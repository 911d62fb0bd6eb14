"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TimeEntry, TaskStatus, EffortEstimate)
- task_store.py: in-memory collection with parent/child queries, write-through persistence
- resolver.py: user token (short or full id) -> task
- task_api.py: store-level operations shared by the CLI and the interactive view
"""
