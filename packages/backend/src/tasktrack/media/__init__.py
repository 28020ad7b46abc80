"""Avatar image processing and blob storage."""
