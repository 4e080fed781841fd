"""Core building blocks shared by every dispatch component."""
