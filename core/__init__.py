"""Core of git-drive: the git mutation pipeline and the drive filesystem view."""
