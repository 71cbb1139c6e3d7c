from ..core import Extension

# Real-time sync adds no schema types. Placeholder synthesis for HTML content
# removes it, since generated per-document types cannot be merged between writers.
DEFINITION = Extension(name="collaboration")
