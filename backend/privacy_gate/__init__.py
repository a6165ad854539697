"""Privacy gate: authorization decisions for profiles, attendees, carpools and schedules."""
