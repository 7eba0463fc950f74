"""
Camera Import Domain

Pulls recent photos off an Olympus camera over Wi-Fi:
- listing.py - Parse the camera's plaintext file index (newest first)
- filters.py - Skip predicates (already imported, duplicates, content type)
- exif.py - Capture time decoding
- gate.py - Retention window cutoff
- importer.py - Worker pool pipeline tying it together
"""

__all__ = ["exif", "filters", "gate", "importer", "listing"]
