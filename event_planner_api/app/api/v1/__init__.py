"""Version 1 of the API: registration, login, events and notifications."""
