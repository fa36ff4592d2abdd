from typing import Dict, List

from constants import PROJECTS

# ---------------------------------------------------------------------------
# Project management
# ---------------------------------------------------------------------------


def list_projects(store) -> List[Dict]:
    """Return all projects, most recently modified first."""
    projects = store.list(PROJECTS)
    return sorted(projects, key=lambda p: p.get("lastModified", ""), reverse=True)


def create_project(store, name: str, description: str = "") -> Dict:
    """Create a project and return it with its new id.

    Parameters
    ----------
    name : str
        Project name; required, surrounding whitespace is dropped.
    description : str
        Optional free-text description.
    """
    name = (name or "").strip()
    if not name:
        raise ValueError("Project name is required.")
    data = {"projectName": name, "description": (description or "").strip()}
    project_id = store.create(PROJECTS, data)
    return store.get(PROJECTS, project_id)


def delete_project(store, project_id: str):
    store.delete(PROJECTS, project_id)
