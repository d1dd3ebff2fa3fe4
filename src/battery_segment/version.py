"""Version information for the battery segment package."""

APP_VERSION = "0.1.0"
