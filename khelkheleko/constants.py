# Firestore collections
USERS = "users"
TOURNAMENTS = "tournaments"
REGISTRATIONS = "registrations"
PENDING_PAYMENTS = "pending_payments"
NOTIFICATIONS = "notifications"
MATCHES = "matches"
PLAYER_STATS = "player_stats"
ACHIEVEMENTS = "achievements"
PLAYER_PROFILES = "player_profiles"

# Roles
ROLE_PLAYER = "player"
ROLE_ORGANIZER = "organizer"
ROLE_ADMIN = "admin"
ROLES = (ROLE_PLAYER, ROLE_ORGANIZER, ROLE_ADMIN)

# Tournament status
STATUS_DRAFT = "draft"
STATUS_PENDING = "pending_approval"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

TOURNAMENT_STATUSES = (
    STATUS_DRAFT,
    STATUS_PENDING,
    STATUS_APPROVED,
    STATUS_REJECTED,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
)

TOURNAMENT_TYPES = [
    ("single_elimination", "Single Elimination"),
    ("double_elimination", "Double Elimination"),
    ("round_robin", "Round Robin"),
    ("swiss", "Swiss System"),
    ("league", "League"),
]

# Registration status
REG_REGISTERED = "registered"
REG_CONFIRMED = "confirmed"
REG_REJECTED = "rejected"

PAYMENT_PENDING = "pending"
PAYMENT_NOT_REQUIRED = "not_required"
PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"

EXPERIENCE_LEVELS = [
    ("beginner", "Beginner"),
    ("intermediate", "Intermediate"),
    ("advanced", "Advanced"),
    ("professional", "Professional"),
]

# Kathmandu
DEFAULT_MAP_CENTER = (27.7172, 85.3240)

NEPAL_PROVINCES = {
    "Koshi Province": [
        "Bhojpur", "Dhankuta", "Ilam", "Jhapa", "Khotang", "Morang",
        "Okhaldhunga", "Panchthar", "Sankhuwasabha", "Solukhumbu", "Sunsari",
        "Taplejung", "Terhathum", "Udayapur",
    ],
    "Madhesh Province": [
        "Bara", "Dhanusha", "Mahottari", "Parsa", "Rautahat", "Saptari",
        "Sarlahi", "Siraha",
    ],
    "Bagmati Province": [
        "Bhaktapur", "Chitwan", "Dhading", "Dolakha", "Kathmandu",
        "Kavrepalanchok", "Lalitpur", "Makwanpur", "Nuwakot", "Ramechhap",
        "Rasuwa", "Sindhuli", "Sindhupalchok",
    ],
    "Gandaki Province": [
        "Baglung", "Gorkha", "Kaski", "Lamjung", "Manang", "Mustang", "Myagdi",
        "Nawalpur", "Parbat", "Syangja", "Tanahun",
    ],
    "Lumbini Province": [
        "Arghakhanchi", "Banke", "Bardiya", "Dang", "Gulmi", "Kapilvastu",
        "Parasi", "Palpa", "Pyuthan", "Rolpa", "Rukum East", "Rupandehi",
    ],
    "Karnali Province": [
        "Dailekh", "Dolpa", "Humla", "Jajarkot", "Jumla", "Kalikot", "Mugu",
        "Rukum West", "Salyan", "Surkhet",
    ],
    "Sudurpashchim Province": [
        "Achham", "Baitadi", "Bajhang", "Bajura", "Dadeldhura", "Darchula",
        "Doti", "Kailali", "Kanchanpur",
    ],
}

ALL_DISTRICTS = sorted(d for ds in NEPAL_PROVINCES.values() for d in ds)

SPORTS_TYPES = [
    # Physical sports
    "Football", "Cricket", "Basketball", "Volleyball", "Badminton", "Tennis",
    "Table Tennis", "Swimming", "Gym/Fitness", "Futsal", "Boxing", "Wrestling",
    "Archery", "Athletics", "Cycling", "Rock Climbing", "Martial Arts", "Hockey",
    "Rugby", "Baseball", "Softball", "Golf", "Bowling", "Skating", "Skiing",
    "Surfing", "Diving", "Gymnastics", "Weightlifting", "Crossfit", "Yoga",
    "Pilates", "Dance", "Aerobics", "Zumba", "Kickboxing", "Taekwondo",
    "Karate", "Judo", "Jiu-Jitsu", "Muay Thai", "Fencing", "Equestrian",
    # Esports
    "Dota 2", "League of Legends", "Counter-Strike 2", "Valorant", "PUBG Mobile",
    "Mobile Legends", "Free Fire", "Call of Duty", "Fortnite", "Apex Legends",
    "Overwatch 2", "FIFA", "NBA 2K", "Rocket League", "Street Fighter",
    "Tekken", "Mortal Kombat", "Chess.com", "Clash Royale", "Clash of Clans",
    "Among Us", "Fall Guys", "Minecraft", "Roblox", "Genshin Impact",
]
