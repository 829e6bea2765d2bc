"""NaiGallery backend: metadata extraction engine and HTTP surface."""
