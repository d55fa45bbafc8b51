"""Cross-cutting interaction statistics (votes + comments)."""
