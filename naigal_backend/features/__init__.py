"""Feature modules of the NaiGallery backend."""
