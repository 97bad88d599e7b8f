#!/usr/bin/env python3
"""
Business Manager — Sample Data Generator
Generates realistic records for every table in storage shape (``*_c`` fields).
Used for development and demo environments.

Usage:
    python scripts/generate-sample-data.py
    python scripts/generate-sample-data.py --clients 20 --output sample-data.json
    RECORD_STORE_BACKEND=sql DATABASE_URL=sqlite+aiosqlite:///./dev.db \\
        python scripts/generate-sample-data.py --seed-store

With --seed-store the records are written through the services to the
configured record store, and foreign keys point at the ids the store assigns.
"""

import os
import sys
import json
import random
import asyncio
import argparse
from datetime import datetime, timedelta, timezone
from typing import Any

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))


# ── Configuration ───────────────────────────────────────────

FIRST_NAMES = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace", "Hank", "Iris", "Jack"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Wilson", "Moore"]
COMPANIES = ["Acme Corp", "Globex", "Initech", "Umbrella", "Stark Industries", "Wayne Enterprises", "Hooli", "Vandelay"]
INDUSTRIES = ["Technology", "Retail", "Healthcare", "Finance", "Manufacturing", "Education"]
PROJECT_NAMES = ["E-commerce Platform", "Mobile App", "Marketing Website", "CRM Migration", "Data Warehouse", "Customer Portal"]
DEPARTMENTS = ["Engineering", "Design", "Marketing", "Operations", "Sales"]
ROLES = ["Developer", "Designer", "Project Manager", "QA Engineer", "Analyst"]
SKILLS = ["React", "Python", "SQL", "Figma", "Testing", "DevOps", "Copywriting"]
TASK_VERBS = ["Design", "Implement", "Review", "Test", "Document", "Deploy"]
TASK_OBJECTS = ["login flow", "checkout page", "API client", "onboarding emails", "reporting dashboard", "search"]

CLIENT_STATUSES = ["Active", "Active", "Active", "Inactive", "Prospect"]
PROJECT_STATUSES = ["Planning", "In Progress", "Review", "Completed", "On Hold"]
TASK_STATUSES = ["To Do", "In Progress", "Review", "Done"]
PRIORITIES = ["High", "Medium", "Low"]
ISSUE_TYPES = ["Bug", "Task", "Feature Request", "Improvement"]
ISSUE_PRIORITIES = ["Highest", "High", "Medium", "Low", "Lowest"]
ISSUE_STATUSES = ["To Do", "In Progress", "In Review", "Done"]
ENVIRONMENTS = ["Production", "Staging", "Development"]


class SampleDataGenerator:
    """Generates records for Business Manager.

    Foreign keys are emitted as 1-based positions in the parent list; the
    store seeder rewrites them to the ids the store assigns.
    """

    def __init__(self, seed: int = 42):
        self.seed = seed
        random.seed(seed)
        self.now = datetime.now(timezone.utc)

    def _day(self, offset_days: int) -> str:
        return (self.now + timedelta(days=offset_days)).date().isoformat()

    def _person(self) -> str:
        return f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}"

    # ── Generators ──────────────────────────────────────────

    def generate_client(self, index: int) -> dict:
        company = COMPANIES[index % len(COMPANIES)]
        contact = self._person()
        return {
            "Name": contact,
            "company_c": company if index < len(COMPANIES) else f"{company} {index}",
            "email_c": f"{contact.split()[0].lower()}{index}@{company.split()[0].lower()}.example",
            "phone_c": f"+1-555-{random.randint(100, 999)}-{random.randint(1000, 9999)}",
            "website_c": f"https://{company.split()[0].lower()}.example",
            "industry_c": random.choice(INDUSTRIES),
            "status_c": random.choice(CLIENT_STATUSES),
        }

    def generate_project(self, index: int, client_count: int) -> dict:
        return {
            "Name": PROJECT_NAMES[index % len(PROJECT_NAMES)],
            "description_c": f"Delivery of {PROJECT_NAMES[index % len(PROJECT_NAMES)].lower()}",
            "status_c": random.choice(PROJECT_STATUSES),
            "deadline_c": self._day(random.randint(-10, 120)),
            "chat_enabled_c": random.random() > 0.3,
            "client_id_c": random.randint(1, client_count),
        }

    def generate_milestone(self, project_ref: int) -> dict:
        return {
            "Name": random.choice(["Discovery", "MVP", "Beta", "Launch"]),
            "due_date_c": self._day(random.randint(-5, 60)),
            "status_c": random.choice(["Not Started", "In Progress", "Completed"]),
            "project_id_c": project_ref,
        }

    def generate_task(self, project_count: int) -> dict:
        status = random.choice(TASK_STATUSES)
        return {
            "Name": f"{random.choice(TASK_VERBS)} {random.choice(TASK_OBJECTS)}",
            "priority_c": random.choice(PRIORITIES),
            "status_c": status,
            "completed_c": status == "Done",
            "due_date_c": self._day(random.randint(-7, 30)),
            "project_id_c": random.randint(1, project_count),
        }

    def generate_team_member(self, index: int) -> dict:
        name = self._person()
        capacity = random.choice([30, 35, 40])
        return {
            "Name": name,
            "email_c": f"{name.replace(' ', '.').lower()}{index}@company.example",
            "role_c": random.choice(ROLES),
            "department_c": random.choice(DEPARTMENTS),
            "status_c": random.choice(["Active", "Active", "Active", "Away", "Inactive"]),
            "skills_c": ",".join(random.sample(SKILLS, 3)),
            "start_date_c": self._day(-random.randint(30, 900)),
            "current_workload_c": random.randint(10, 45),
            "max_capacity_c": capacity,
            "completed_tasks_this_month_c": random.randint(0, 20),
            "total_tasks_this_month_c": random.randint(20, 30),
            "average_task_completion_time_c": round(random.uniform(1.0, 8.0), 1),
        }

    def generate_time_entry(self, project_count: int, task_count: int) -> dict:
        return {
            "description_c": f"{random.choice(TASK_VERBS)} {random.choice(TASK_OBJECTS)}",
            "date_c": self._day(-random.randint(0, 30)),
            "duration_c": round(random.choice([0.5, 1, 1.5, 2, 3, 4, 6]), 2),
            "project_id_c": random.randint(1, project_count),
            "task_id_c": random.randint(1, task_count),
        }

    def generate_issue(self, project_count: int) -> dict:
        return {
            "title_c": f"{random.choice(TASK_OBJECTS).capitalize()} {random.choice(['fails', 'is slow', 'needs polish'])}",
            "type_c": random.choice(ISSUE_TYPES),
            "priority_c": random.choice(ISSUE_PRIORITIES),
            "status_c": random.choice(ISSUE_STATUSES),
            "reporter_c": self._person(),
            "assignee_c": self._person(),
            "environment_c": random.choice(ENVIRONMENTS),
            "project_id_c": random.randint(1, project_count),
        }

    # ── Main Generator ──────────────────────────────────────

    def generate_all(self, counts: dict[str, int] | None = None) -> dict[str, Any]:
        c = counts or {"clients": 8, "projects": 6, "tasks": 40, "team_members": 12, "time_entries": 80, "issues": 15}

        clients = [self.generate_client(i) for i in range(c["clients"])]
        projects = [self.generate_project(i, len(clients)) for i in range(c["projects"])]
        milestones = [self.generate_milestone(i + 1) for i in range(len(projects)) for _ in range(2)]
        tasks = [self.generate_task(len(projects)) for _ in range(c["tasks"])]
        members = [self.generate_team_member(i) for i in range(c["team_members"])]
        entries = [self.generate_time_entry(len(projects), len(tasks)) for _ in range(c["time_entries"])]
        issues = [self.generate_issue(len(projects)) for _ in range(c["issues"])]

        data = {
            "client_c": clients,
            "project_c": projects,
            "milestone_c": milestones,
            "task_c": tasks,
            "team_member_c": members,
            "time_entry_c": entries,
            "issue_c": issues,
        }
        return {
            "generated_at": self.now.isoformat(),
            "generator": "Business Manager Sample Data Generator v1.0",
            "seed": self.seed,
            "counts": {table: len(rows) for table, rows in data.items()},
            "data": data,
        }


# ── Store Seeder ────────────────────────────────────────────

# (table, registry attribute, foreign keys as field → parent table)
SEED_ORDER = [
    ("client_c", "clients", {}),
    ("project_c", "projects", {"client_id_c": "client_c"}),
    ("milestone_c", "milestones", {"project_id_c": "project_c"}),
    ("task_c", "tasks", {"project_id_c": "project_c"}),
    ("team_member_c", "team_members", {}),
    ("time_entry_c", "time_entries", {"project_id_c": "project_c", "task_id_c": "task_c"}),
    ("issue_c", "issues", {"project_id_c": "project_c"}),
]


async def seed_store(data: dict[str, list[dict]]) -> dict[str, int]:
    from config import StoreSettings
    from main import open_record_store
    from notifications import NotificationCenter
    from services import ServiceRegistry

    store, engine = await open_record_store(StoreSettings.from_env())
    registry = ServiceRegistry(store, NotificationCenter())
    assigned: dict[str, list[int]] = {}
    try:
        for table, attribute, references in SEED_ORDER:
            rows = []
            for row in data.get(table, []):
                row = dict(row)
                for field, parent in references.items():
                    parent_ids = assigned.get(parent) or []
                    position = row.get(field)
                    row[field] = parent_ids[position - 1] if position and position <= len(parent_ids) else None
                rows.append(row)
            batch = await getattr(registry, attribute).create_many(rows)
            assigned[table] = [r["Id"] for r in batch.succeeded]
            if batch.failed:
                print(f"   ⚠️  {table}: {len(batch.failed)} record(s) rejected")
    finally:
        await store.aclose()
        if engine is not None:
            await engine.dispose()
    return {table: len(ids) for table, ids in assigned.items()}


# ── CLI ─────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(description="Business Manager Sample Data Generator")
    parser.add_argument("--clients", type=int, default=8, help="Number of clients")
    parser.add_argument("--projects", type=int, default=6, help="Number of projects")
    parser.add_argument("--tasks", type=int, default=40, help="Number of tasks")
    parser.add_argument("--members", type=int, default=12, help="Number of team members")
    parser.add_argument("--entries", type=int, default=80, help="Number of time entries")
    parser.add_argument("--issues", type=int, default=15, help="Number of issues")
    parser.add_argument("--output", type=str, default="sample-data.json", help="Output file")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--seed-store", action="store_true", help="Write the records to the configured record store")
    args = parser.parse_args()

    generator = SampleDataGenerator(seed=args.seed)
    data = generator.generate_all({
        "clients": max(args.clients, 1),
        "projects": max(args.projects, 1),
        "tasks": max(args.tasks, 1),
        "team_members": args.members,
        "time_entries": args.entries,
        "issues": args.issues,
    })

    if args.seed_store:
        created = asyncio.run(seed_store(data["data"]))
        print("✅ Record store seeded")
        for table, count in created.items():
            print(f"   {table}: {count}")
        return

    with open(args.output, "w") as f:
        json.dump(data, f, indent=2, default=str)

    counts = data["counts"]
    print(f"✅ Sample data generated: {args.output}")
    for table, count in counts.items():
        print(f"   {table}: {count}")
    print(f"   Total Records: {sum(counts.values())}")


if __name__ == "__main__":
    main()
