# models/user.py
from sqlalchemy import Column, BigInteger, DateTime, String, Text, Integer, JSON
from sqlalchemy.sql import func

from .base import Base, utcnow

YEARS = ("1st", "2nd", "3rd", "Final")
GENDERS = ("Male", "Female", "Non-binary", "Other")
LOOKING_FOR = ("Relationship", "Friendship", "Casual", "Not sure")
AGE_RANGE = (18, 30)

# Коды направлений обучения и их названия
BRANCHES = {
    "CSE": "Computer Science Engineering",
    "IT": "Information Technology",
    "SE": "Software Engineering",
    "EE": "Electrical Engineering",
    "ECE": "Electronics & Communication",
    "ENTC": "Electronics & Telecommunication",
    "ME": "Mechanical Engineering",
    "CE": "Civil Engineering",
    "CHE": "Chemical Engineering",
    "BME": "Biomedical Engineering",
    "AE": "Aerospace Engineering",
    "AIDS": "AI & Data Science",
    "ML": "Machine Learning",
    "AI": "Artificial Intelligence",
    "DS": "Data Science",
    "CYBER": "Cyber Security",
    "IOT": "Internet of Things",
    "ROBOTICS": "Robotics Engineering",
    "AUTO": "Automobile Engineering",
    "PROD": "Production Engineering",
    "TEXTILE": "Textile Engineering",
    "FOOD": "Food Technology",
    "BIOTECH": "Biotechnology",
    "MBA": "Master of Business Administration",
    "BBA": "Bachelor of Business Administration",
    "MKTG": "Marketing",
    "FIN": "Finance",
    "ACC": "Accounting",
    "ECON": "Economics",
    "PSYCH": "Psychology",
    "BIO": "Biology",
    "CHEM": "Chemistry",
    "PHY": "Physics",
    "MATH": "Mathematics",
    "STAT": "Statistics",
    "ENG": "English",
    "HIST": "History",
    "POLSCI": "Political Science",
    "SOC": "Sociology",
    "PHIL": "Philosophy",
    "ART": "Art & Design",
    "MUSIC": "Music",
    "THEATER": "Theater",
    "COMM": "Communications",
    "JOURN": "Journalism",
    "MED": "Medicine",
    "MBBS": "Bachelor of Medicine",
    "NURS": "Nursing",
    "PHARMC": "Pharmacy",
    "LAW": "Law",
    "EDU": "Education",
    "ARCH": "Architecture",
    "OTHER": "Other",
}


class User(Base):
    __tablename__ = "users"

    id = Column(BigInteger, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    college = Column(String(200), nullable=False, index=True)

    bio = Column(Text, nullable=False, default="")
    age = Column(Integer, nullable=True)
    year = Column(String(16), nullable=True)
    branch = Column(String(16), nullable=True)
    gender = Column(String(16), nullable=True)
    interests = Column(JSON, nullable=False, default=list)
    looking_for = Column(String(32), nullable=False, default="Not sure")

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User id={self.id} email={self.email}>"
