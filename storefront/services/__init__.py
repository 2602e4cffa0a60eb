# Cart services
