"""Calendar resolution, time normalization and feed queries."""
