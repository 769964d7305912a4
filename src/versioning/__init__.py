"""Version data models and npm range helpers."""
