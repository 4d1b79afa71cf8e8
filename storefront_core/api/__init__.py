"""HTTP-facing helpers: error responder, handler wrapper, dependencies."""
