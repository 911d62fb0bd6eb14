"""
Read-only projections of a TaskStore.

- status_style.py: the one status -> icon/color mapping
- tree.py: arena forest + box-drawing renderer
- visibility.py: filtered, expand-aware flat view for the interactive console
- reports.py: period reports and statistics
"""
