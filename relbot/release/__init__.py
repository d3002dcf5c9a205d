"""Release pipeline: version, name, notes, hosting and orchestration."""
