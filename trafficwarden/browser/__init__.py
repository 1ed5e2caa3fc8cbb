"""Browser-facing collaborators: driver contract, Playwright driver, device profiles, extractor."""
