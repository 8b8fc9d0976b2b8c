"""Document storage collaborators: file I/O, tree listing, environment loading."""
