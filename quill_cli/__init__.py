"""quill command-line interface."""
