"""pursgraph: PureScript code intelligence over purs ide and Tree-sitter."""

__version__ = "0.1.0"
