"""
RDF serialization formats.
"""

from rdf_shacl.formats.turtle import TurtleParser, TurtleSyntaxError, parse_turtle

__all__ = [
    "TurtleParser",
    "TurtleSyntaxError",
    "parse_turtle",
]
