"""CI server clients."""

from buildrelay.client.jenkins_client import JenkinsClient

__all__ = ["JenkinsClient"]
