"""
CaseCraft Agents Module

Contains the LLM-backed agents:
- TestCaseGenerator: Screenshot to test case through a vision model
- InstructionAgent: Natural-language instructions to test case
"""

from casecraft.agents.base import BaseAgent, RetryConfig, create_llm
from casecraft.agents.generator import TestCaseGenerator, build_basic_test_case
from casecraft.agents.instructions import InstructionAgent, InstructionParser

__all__ = [
    "BaseAgent",
    "RetryConfig",
    "create_llm",
    "TestCaseGenerator",
    "build_basic_test_case",
    "InstructionAgent",
    "InstructionParser",
]
