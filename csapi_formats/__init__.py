"""OGC API Connected Systems format engine.

Detects the wire encoding of a CSAPI response (GeoJSON, SensorML JSON or
SWE Common), converts it to canonical records per resource kind, validates
nested SWE Common data, and encodes/decodes packed binary and delimited
text values.
"""

__version__ = "0.1.0"
