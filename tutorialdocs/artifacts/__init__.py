"""Locate, download and verify versioned artifacts."""