"""Built-in advisor pool used when ADVISORS is not configured."""

DEFAULT_ADVISORS = [
    {"name": "Alicia Puente", "phone": "+52 55 1234 5678"},
    {"name": "David Villagarcia", "phone": "+52 55 2345 6789"},
    {"name": "Hector Lozano", "phone": "+52 55 3456 7890"},
    {"name": "Percy Babb", "phone": "+52 55 4567 8901"},
]
