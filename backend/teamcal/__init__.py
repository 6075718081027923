"""teamcal - team event scheduling and RSVP service."""
