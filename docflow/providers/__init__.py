"""Concrete adapters for the collaborator interfaces in docflow.interfaces."""
