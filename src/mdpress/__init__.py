"""mdpress: convert a Markdown document into a paginated PDF or a DOCX file."""

__version__ = "0.1.0"
