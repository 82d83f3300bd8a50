"""Pure domain rules: the worker record shape and form validation."""
