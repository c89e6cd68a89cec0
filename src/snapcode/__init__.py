"""SnapCode — backend for a visual code-snippet design tool.

Users sign in with Google, then build projects and snippets and
render them to PNG exports. Every resource belongs to exactly one user.
"""

__version__ = "0.1.0"
