"""Security module — risk classification, entry building, write pipeline,
interception, retention and export of the admin action trail."""
