"""
Constants used throughout the OData path library.
"""

# Fixed identifiers of the dollar segments
REF_SEGMENT = "$ref"
COUNT_SEGMENT = "$count"
VALUE_SEGMENT = "$value"
METADATA_SEGMENT = "$metadata"

# A structural property with this name (case-insensitive) suppresses the /$value path
CONTENT_PROPERTY_NAME = "content"

EDM_STREAM = "Edm.Stream"

# OData primitive types whose path parameters are rendered inside single quotes
QUOTED_PRIMITIVE_TYPES = {
    "Edm.String",
    "Edm.Date",
    "Edm.DateTimeOffset",
    "Edm.Duration",
    "Edm.TimeOfDay",
}

# Every primitive type the engine knows about
EDM_PRIMITIVE_TYPES = {
    "Edm.Binary",
    "Edm.Boolean",
    "Edm.Byte",
    "Edm.Date",
    "Edm.DateTimeOffset",
    "Edm.Decimal",
    "Edm.Double",
    "Edm.Duration",
    "Edm.Guid",
    "Edm.Int16",
    "Edm.Int32",
    "Edm.Int64",
    "Edm.SByte",
    "Edm.Single",
    "Edm.Stream",
    "Edm.String",
    "Edm.TimeOfDay",
    "Edm.Geography",
    "Edm.Geometry",
    "Edm.Untyped",
}

COLLECTION_PREFIX = "Collection("

# Prefix of environment variables read by ConvertSettings.from_env()
ENV_PREFIX = "ODATA_PATHS_"

DEFAULT_NAVIGATION_PROPERTY_DEPTH = 5
