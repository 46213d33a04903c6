"""Solution and project discovery."""

from .solution_parser import (
    ProjectConfiguration,
    Solution,
    SolutionProject,
    find_solutions,
    is_solution_file,
    parse_sln,
    parse_slnf,
    parse_slnx,
    parse_solution,
    solution_for_project,
)

__all__ = [
    "ProjectConfiguration",
    "Solution",
    "SolutionProject",
    "find_solutions",
    "is_solution_file",
    "parse_sln",
    "parse_slnf",
    "parse_slnx",
    "parse_solution",
    "solution_for_project",
]
