"""HealthGuard: safety triage of health claims."""
