"""topicrelay - Slack to assistant API relay."""
