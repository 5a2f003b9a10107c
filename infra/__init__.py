"""AWS CDK application for the D2C platform."""
