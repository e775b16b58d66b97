"""Build rules: attributes, skills, progression and derived stats."""
