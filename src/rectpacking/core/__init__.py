"""Value types, errors and layout checks shared by every packing component."""
