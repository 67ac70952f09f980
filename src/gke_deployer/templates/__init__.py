"""Manifest template selection and rendering."""

from .composer import compose_templates
from .renderer import TemplateData, TemplateRenderer, build_template_data

__all__ = [
    "compose_templates",
    "TemplateData",
    "TemplateRenderer",
    "build_template_data",
]
