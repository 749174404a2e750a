"""Column values, their SQL types, scalar decoding and conversions between views and owned values."""

__version__ = "0.1.0"
__all__ = ["ref_convert", "sqltypes", "unmarshal", "value", "value_ref"]