"""
Project Documents
Reads and writes the project-definition JSON shared with the persistence layer
"""

from .parser import dump_project, parse_project, parse_project_result

__all__ = ["dump_project", "parse_project", "parse_project_result"]
