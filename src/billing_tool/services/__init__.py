"""Services subpackage - import, view, export and summary around the engine."""
