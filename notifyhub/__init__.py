"""Real-time notification and email delivery service."""
