"""Application version information."""

# Semantic Versioning: MAJOR.MINOR.PATCH
# - MAJOR: Breaking changes to the command surface or data model
# - MINOR: New features, functionality additions
# - PATCH: Bug fixes, small improvements
VERSION = "0.4.0"
