from seamscan.reporting.formatters import format_json, format_report, format_sarif, format_text

__all__ = ["format_json", "format_report", "format_sarif", "format_text"]
