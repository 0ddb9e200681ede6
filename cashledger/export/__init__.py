"""Premium export builders."""

from cashledger.export.json_export import EXPORT_VERSION, build_json_export

__all__ = ["EXPORT_VERSION", "build_json_export"]
