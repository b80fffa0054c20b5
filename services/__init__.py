"""Services used by the desktop shell around the agent runtime."""
