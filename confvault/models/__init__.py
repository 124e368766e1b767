from confvault.models.application import Application
from confvault.models.environment import Environment
from confvault.models.membership import Membership
from confvault.models.secret import Secret, SecretEnvironment
from confvault.models.variable import Variable, VariableEnvironment

__all__ = [
    "Application",
    "Environment",
    "Membership",
    "Secret",
    "SecretEnvironment",
    "Variable",
    "VariableEnvironment",
]
