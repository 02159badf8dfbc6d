"""Domain services: accounts, access control, grievance store and file storage."""
