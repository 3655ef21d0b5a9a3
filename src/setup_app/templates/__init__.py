"""Static payloads pushed into new repositories."""

from src.setup_app.templates.files import (
    SETUP_LABELS_WORKFLOW_PATH,
    TemplateFile,
    default_contributing_file,
    default_license_file,
    default_template_files,
    setup_labels_workflow,
)
from src.setup_app.templates.labels import default_labels

__all__ = [
    "SETUP_LABELS_WORKFLOW_PATH",
    "TemplateFile",
    "default_contributing_file",
    "default_labels",
    "default_license_file",
    "default_template_files",
    "setup_labels_workflow",
]
