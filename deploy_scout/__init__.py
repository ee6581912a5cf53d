"""Deploy Scout: SSH sessions and health checks for Docker Compose deployments."""
