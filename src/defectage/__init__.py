"""defectage — consecutive-failure age reports for Allure test results."""

__version__ = "0.1.0"
