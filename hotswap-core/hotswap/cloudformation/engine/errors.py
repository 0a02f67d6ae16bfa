class CfnEvaluationException(Exception):
    """Raised if a CloudFormation expression cannot be evaluated against the template and the deployed stack."""

    pass
