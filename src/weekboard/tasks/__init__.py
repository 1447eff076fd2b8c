"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskCategory) and the JSON wire mapping
- task_store.py: observable in-memory state of the visible week
- week.py: Monday-start week windows, labels and navigation
- sync_engine.py: optimistic create/edit/delete/reorder/move with rollback
- drag.py: drag gesture -> reorder / move intents
- insights.py: weekly completion stats
- task_api.py: form-boundary validation helpers used by the console
"""
