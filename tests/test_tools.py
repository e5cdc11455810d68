"""Assistant tools run through the same services and checks as the REST API."""

import json
from uuid import UUID, uuid4

import pytest
from conftest import hours, iso

from app.assistant.tools import TOOLS, ToolContext, execute_tool, tool_definitions
from app.models.plan import Plan
from app.models.task import Task


@pytest.fixture
def ctx(db, user):
    return ToolContext(db=db, user_id=user.id)


@pytest.fixture
def other_ctx(db, other_user):
    return ToolContext(db=db, user_id=other_user.id)


def test_definitions_expose_camel_case_parameters():
    definitions = {d["function"]["name"]: d["function"] for d in tool_definitions()}

    assert set(definitions) == set(TOOLS)
    assert {"createTask", "updateTask", "deleteTask", "listTasks", "createPlan",
            "addPlanBlock", "updatePlanBlock", "deletePlanBlock"} <= set(definitions)
    task_props = definitions["createTask"]["parameters"]["properties"]
    assert "scheduledStart" in task_props
    assert "scheduled_start" not in task_props
    assert "taskId" in definitions["updateTask"]["parameters"]["properties"]


def test_create_task_returns_confirmation(ctx, db):
    result = execute_tool("createTask", json.dumps({"title": "Buy milk", "priority": "high"}), ctx)

    assert result["ok"] is True
    assert result["task"]["title"] == "Buy milk"
    assert result["task"]["priority"] == "high"
    assert db.query(Task).count() == 1


def test_validation_errors_come_back_as_details(ctx, db):
    result = execute_tool("createTask", {"title": "", "priority": "someday"}, ctx)

    assert result["ok"] is False
    assert result["code"] == "validation_error"
    assert {item["field"] for item in result["details"]} == {"title", "priority"}
    assert db.query(Task).count() == 0


def test_malformed_json_and_unknown_tool(ctx):
    assert execute_tool("createTask", "{not json", ctx)["code"] == "invalid_arguments"
    assert execute_tool("launchRocket", {}, ctx)["code"] == "unknown_tool"


def test_missing_principal_is_unauthorized(db):
    result = execute_tool("listTasks", {}, ToolContext(db=db, user_id=None))

    assert result == {"ok": False, "code": "unauthorized", "error": "Unauthorized"}


def test_update_task_by_camel_case_id(ctx):
    created = execute_tool("createTask", {"title": "Draft"}, ctx)["task"]

    result = execute_tool("updateTask", {"taskId": created["id"], "status": "completed"}, ctx)

    assert result["ok"] is True
    assert result["task"]["status"] == "completed"
    assert result["task"]["title"] == "Draft"


def test_deleted_task_is_not_found_for_updates(ctx):
    created = execute_tool("createTask", {"title": "Temp"}, ctx)["task"]
    assert execute_tool("deleteTask", {"taskId": created["id"]}, ctx) == {"ok": True}

    result = execute_tool("updateTask", {"taskId": created["id"], "title": "Back"}, ctx)

    assert result["code"] == "not_found"
    assert result["error"] == "Task not found"


def test_other_users_task_is_not_found(ctx, other_ctx, db):
    created = execute_tool("createTask", {"title": "Alice only"}, ctx)["task"]

    result = execute_tool("deleteTask", {"taskId": created["id"]}, other_ctx)

    assert result["code"] == "not_found"
    assert db.get(Task, UUID(created["id"])).deleted is False


def test_list_tasks_hides_deleted(ctx):
    keep = execute_tool("createTask", {"title": "Keep"}, ctx)["task"]
    drop = execute_tool("createTask", {"title": "Drop"}, ctx)["task"]
    execute_tool("deleteTask", {"taskId": drop["id"]}, ctx)

    result = execute_tool("listTasks", {"limit": 10}, ctx)

    assert [task["id"] for task in result["tasks"]] == [keep["id"]]


def test_create_plan_with_inline_task(ctx, db, saturday):
    args = {
        "title": "Saturday",
        "blocks": [{"startTs": iso(saturday), "endTs": iso(saturday + hours(1)), "task": {"title": "Gym"}}],
    }

    result = execute_tool("createPlan", args, ctx)

    assert result["ok"] is True
    block = result["plan"]["blocks"][0]
    assert block["title"] == "Gym"
    assert block["taskId"] is not None
    assert db.get(Task, UUID(block["taskId"])).title == "Gym"


def test_create_plan_with_bad_reference_reports_field(ctx, db, saturday):
    args = {
        "title": "Saturday",
        "blocks": [{"startTs": iso(saturday), "endTs": iso(saturday + hours(1)), "task": {"id": str(uuid4())}}],
    }

    result = execute_tool("createPlan", args, ctx)

    assert result["ok"] is False
    assert result["code"] == "bad_request"
    assert result["field"] == "blocks.0.task.id"
    assert db.query(Plan).count() == 0


def test_block_tools_round_trip(ctx, saturday):
    plan = execute_tool(
        "createPlan",
        {"title": "Day", "blocks": [{"startTs": iso(saturday), "endTs": iso(saturday + hours(1)), "title": "Brunch"}]},
        ctx,
    )["plan"]

    added = execute_tool(
        "addPlanBlock",
        {"planId": plan["id"], "startTs": iso(saturday + hours(2)), "endTs": iso(saturday + hours(3)), "title": "Walk"},
        ctx,
    )
    assert added["ok"] is True
    assert added["block"]["orderIndex"] == 1

    block_id = added["block"]["id"]
    assert execute_tool("updatePlanBlock", {"planId": plan["id"], "blockId": block_id, "completed": True}, ctx) == {"ok": True}

    fetched = execute_tool("getPlan", {"planId": plan["id"]}, ctx)["plan"]
    assert [b["completed"] for b in fetched["blocks"]] == [False, True]

    assert execute_tool("deletePlanBlock", {"planId": plan["id"], "blockId": block_id}, ctx) == {"ok": True}
    assert execute_tool("updatePlan", {"planId": plan["id"], "title": "Lazy day"}, ctx) == {"ok": True}

    plans = execute_tool("listPlans", {}, ctx)["plans"]
    assert [(p["title"], len(p["blocks"])) for p in plans] == [("Lazy day", 1)]

    assert execute_tool("deletePlan", {"planId": plan["id"]}, ctx) == {"ok": True}
    assert execute_tool("getPlan", {"planId": plan["id"]}, ctx)["code"] == "not_found"


def test_update_block_rejects_end_before_start(ctx, saturday):
    plan = execute_tool(
        "createPlan",
        {"title": "Day", "blocks": [{"startTs": iso(saturday), "endTs": iso(saturday + hours(1))}]},
        ctx,
    )["plan"]

    result = execute_tool(
        "updatePlanBlock",
        {"planId": plan["id"], "blockId": plan["blocks"][0]["id"], "endTs": iso(saturday - hours(1))},
        ctx,
    )

    assert result["ok"] is False
    assert result["field"] == "end_ts"
