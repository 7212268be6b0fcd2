"""Populate a local database with an admin, students, courses and feedback."""
from __future__ import annotations

import random
from datetime import timedelta

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from accounts.models import Role
from accounts.services import create_account, update_profile
from courses.lifecycle import submit_feedback
from courses.models import Course
from courses.models_feedback import Feedback
from courses.services import create_course

ADMIN_EMAIL = "admin@example.edu"
ADMIN_PASSWORD = "Feedback-Admin#2024"
STUDENT_PASSWORD = "Feedback-Student#2024"

STUDENTS = (
    "Arjun Sharma",
    "Priya Patel",
    "Rahul Verma",
    "Ananya Singh",
    "Vikash Kumar",
    "Kavya Reddy",
    "Amit Gupta",
    "Sneha Joshi",
)

COURSES = (
    ("Introduction to Computer Science", "CS101", "Dr. Suresh Agarwal", "Computer Science", 4),
    ("Data Structures and Algorithms", "CS201", "Prof. Meera Sharma", "Computer Science", 4),
    ("Operating Systems", "CS301", "Dr. Arjun Malhotra", "Computer Science", 3),
    ("Database Management Systems", "CS302", "Prof. Kavita Nair", "Computer Science", 3),
    ("Software Engineering", "CS401", "Dr. Ravi Chandra", "Computer Science", 3),
    ("Engineering Mathematics III", "MATH301", "Prof. Sanjay Gupta", "Applied Mathematics", 4),
    ("Machine Learning", "CS501", "Prof. Vikram Singh", "Computer Science", 4),
    ("Technical Communication", "ENG201", "Prof. Neha Jain", "Humanities", 2),
)

MESSAGES = (
    "Excellent course! Concepts were explained clearly with good examples.",
    "Good course overall, but it could use more practical examples.",
    "Challenging but rewarding. I learned many new techniques.",
    "Average course. Some topics needed a better explanation.",
    "Great hands-on assignments that mirrored real-world problems.",
    "Knowledgeable lecturer, though the pace was fast for beginners.",
    "Well-structured syllabus and very helpful tutorial sessions.",
    "Would benefit from more interactive lab sessions.",
)


class Command(BaseCommand):
    help = "Create demo accounts, courses and feedback for local development."

    def add_arguments(self, parser):
        parser.add_argument("--reset", action="store_true", help="Delete existing feedback, courses and users first.")
        parser.add_argument("--seed", type=int, default=42, help="Random seed for ratings and dates.")

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options["seed"])
        if options["reset"]:
            Feedback.objects.all().delete()
            Course.objects.all().delete()
            User.objects.all().delete()
            self.stdout.write("Cleared existing data")

        if User.objects.filter(email__iexact=ADMIN_EMAIL).exists():
            self.stdout.write(self.style.WARNING("Demo data already present; use --reset to recreate it."))
            return

        admin = create_account(email=ADMIN_EMAIL, password=ADMIN_PASSWORD, name="Demo Admin", role=Role.ADMIN)

        students = []
        for index, name in enumerate(STUDENTS):
            email = name.lower().replace(" ", ".") + "@example.edu"
            student = create_account(email=email, password=STUDENT_PASSWORD, name=name)
            update_profile(
                student,
                phone=f"+91 98{rng.randrange(10_000_000, 99_999_999)}",
                date_of_birth=f"{1998 + index % 5}-{index % 12 + 1:02d}-{index % 28 + 1:02d}",
            )
            students.append(student)

        courses = [
            create_course(admin, name=name, code=code, instructor=instructor, department=department, credits=credits)
            for name, code, instructor, department, credits in COURSES
        ]

        now = timezone.now()
        created = 0
        for student in students:
            for course in rng.sample(courses, k=rng.randint(2, 5)):
                rating = rng.choices((1, 2, 3, 4, 5), weights=(1, 1, 2, 4, 4))[0]
                feedback = submit_feedback(
                    student,
                    course.pk,
                    rating=rating,
                    message=rng.choice(MESSAGES),
                    is_anonymous=rng.random() < 0.2,
                )
                # Spread submissions over the last six months for the trend chart.
                Feedback.objects.filter(pk=feedback.pk).update(created_at=now - timedelta(days=rng.randint(0, 170)))
                created += 1

        self.stdout.write(
            self.style.SUCCESS(f"Seeded 1 admin, {len(students)} students, {len(courses)} courses, {created} feedback")
        )
        self.stdout.write(f"Admin login: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
