"""
Template engine configuration for the application.
"""
from functools import lru_cache
from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


@lru_cache
def create_jinja_env(templates_dir: str = str(TEMPLATES_DIR)) -> Environment:
    """
    Create a Jinja2 environment.

    Args:
        templates_dir: Directory containing template files

    Returns:
        Jinja2 Environment
    """
    return Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(['html', 'xml']),
        trim_blocks=True,
        lstrip_blocks=True
    )


def render_template(name: str, **context) -> str:
    """
    Render a template file from the package templates directory.

    Args:
        name: Template path relative to the templates directory
        context: Variables to use in the template

    Returns:
        Rendered string
    """
    return create_jinja_env().get_template(name).render(**context)
