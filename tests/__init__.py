from types import SimpleNamespace
from unittest import mock

from graphql import build_schema
from opentelemetry.test.test_base import TestBase

from opentelemetry.instrumentation.graphql_platform.agent import MonitoringAgent


class GraphQLInstrumentationTestBase(TestBase):
    @staticmethod
    def build_schema(source):
        return build_schema(source, no_location=False)

    @staticmethod
    def resolve_info(parent_type, field_name, context=None):
        return SimpleNamespace(
            parent_type=parent_type, field_name=field_name, context=context
        )


def recording_agent():
    """A MonitoringAgent mock that runs every block it is given"""
    agent = mock.Mock(spec=MonitoringAgent)
    agent.trace_execution_scoped.side_effect = lambda label, block: block()
    return agent
