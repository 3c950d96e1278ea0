"""Turn JUnit reports into JIRA issues, CSV, HTML and Slack outputs."""

__version__ = "0.1.0"
