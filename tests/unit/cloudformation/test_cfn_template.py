import asyncio
import json

from hotswap.cloudformation.engine.template import (
    NestedStackTemplates,
    find_nested_stack,
    parse_template,
    references,
)


def test_parse_json_template():
    template = {"Resources": {"Topic": {"Type": "AWS::SNS::Topic"}}}
    assert parse_template(json.dumps(template)) == template


def test_parse_yaml_template():
    template = parse_template("Resources:\n  Topic:\n    Type: AWS::SNS::Topic\n")
    assert template == {"Resources": {"Topic": {"Type": "AWS::SNS::Topic"}}}


def test_parse_yaml_template_with_short_form_intrinsics():
    template = parse_template(
        """
AWSTemplateFormatVersion: 2010-09-09
Resources:
  Function:
    Type: AWS::Lambda::Function
    Properties:
      FunctionName: !Sub "${AWS::StackName}-function"
      Role: !GetAtt Role.Arn
      Environment:
        Variables:
          BUCKET: !Ref Bucket
          TABLE: !Select [0, !Split [",", !ImportValue Tables]]
          QUEUE: !GetAtt [Queue, QueueName]
Outputs:
  Nested:
    Value: !GetAtt NestedStack.Outputs.Name
"""
    )

    assert template["AWSTemplateFormatVersion"] == "2010-09-09"
    properties = template["Resources"]["Function"]["Properties"]
    assert properties["FunctionName"] == {"Fn::Sub": "${AWS::StackName}-function"}
    assert properties["Role"] == {"Fn::GetAtt": ["Role", "Arn"]}
    assert properties["Environment"]["Variables"] == {
        "BUCKET": {"Ref": "Bucket"},
        "TABLE": {"Fn::Select": [0, {"Fn::Split": [",", {"Fn::ImportValue": "Tables"}]}]},
        "QUEUE": {"Fn::GetAtt": ["Queue", "QueueName"]},
    }
    assert template["Outputs"]["Nested"]["Value"] == {"Fn::GetAtt": ["NestedStack", "Outputs.Name"]}


def test_evaluate_short_form_yaml_template(create_evaluator, cfn_sdk):
    cfn_sdk.add_stack_resource("Bucket", "my-bucket", "AWS::S3::Bucket")
    evaluator = create_evaluator("Outputs:\n  BucketArn:\n    Value: !GetAtt Bucket.Arn\n")

    result = asyncio.run(evaluator.evaluate_cfn_expression({"Fn::GetAtt": ["Outputs", "BucketArn"]}))

    assert result == "arn:aws:s3:::my-bucket"


def test_evaluator_parses_template_string(create_evaluator):
    evaluator = create_evaluator(json.dumps({"Parameters": {"Env": {"Type": "String", "Default": "dev"}}}))
    assert evaluator.template["Parameters"]["Env"]["Default"] == "dev"


def test_find_nested_stack():
    inner = NestedStackTemplates(physical_name="inner", generated_template={})
    sibling = NestedStackTemplates(physical_name="sibling", generated_template={})
    outer = NestedStackTemplates(
        physical_name="outer",
        generated_template={},
        nested_stack_templates={"Inner": inner},
    )
    nested_stacks = {"Outer": outer, "Sibling": sibling}

    assert find_nested_stack("Outer", nested_stacks) is outer
    assert find_nested_stack("Inner", nested_stacks) is inner
    assert find_nested_stack("Sibling", nested_stacks) is sibling
    assert find_nested_stack("Unknown", nested_stacks) is None
    assert find_nested_stack("Inner", {}) is None


def test_references():
    resource = {
        "Type": "AWS::Lambda::Function",
        "Properties": {
            "Role": {"Fn::GetAtt": ["Role", "Arn"]},
            "Layers": [{"Ref": "Layer"}],
            "Timeout": 30,
            "Description": None,
        },
    }
    assert references("Role", resource)
    assert references("Layer", resource)
    assert not references("Bucket", resource)
    assert not references("Bucket", None)
    assert not references("30", resource)
