from mealgen.storage.models import JobStatus
from mealgen.workers import tasks

PARAMS = {"days": 3, "mealsPerDay": 3, "people": 2, "targetCalories": 2000}


def test_process_task_runs_job(monkeypatch, store, gen_client):
    monkeypatch.setattr(tasks, "JobStore", lambda: store)
    monkeypatch.setattr(tasks, "get_generation_client", lambda: gen_client)
    job = store.create("user-a", PARAMS)

    assert tasks.process_meal_plan_job(job.id) == {"status": "completed", "job_id": job.id}
    assert store.get(job.id).status == JobStatus.COMPLETED.value


def test_process_task_skips_claimed_job(monkeypatch, store, gen_client):
    monkeypatch.setattr(tasks, "JobStore", lambda: store)
    monkeypatch.setattr(tasks, "get_generation_client", lambda: gen_client)
    job = store.create("user-a", PARAMS)
    store.claim(job.id)

    result = tasks.process_meal_plan_job(job.id)
    assert result["status"] == "skipped"


def test_reclaim_task_redispatches(monkeypatch, store):
    dispatched = []
    monkeypatch.setattr(tasks, "JobStore", lambda: store)
    monkeypatch.setattr(tasks.process_meal_plan_job, "delay", dispatched.append)
    monkeypatch.setattr(tasks.settings, "job_lease_seconds", 0)
    job = store.create("user-a", PARAMS)
    store.claim(job.id)

    result = tasks.reclaim_stale_jobs()
    assert dispatched == [job.id]
    assert result == {"dispatched": [job.id], "failed": []}


def test_enqueue_uses_celery_delay(monkeypatch):
    sent = []
    monkeypatch.setattr(tasks.process_meal_plan_job, "delay", sent.append)
    tasks.enqueue_meal_plan_job("0f8fad5b-d9cb-469f-a165-70867728950e")
    assert sent == ["0f8fad5b-d9cb-469f-a165-70867728950e"]
