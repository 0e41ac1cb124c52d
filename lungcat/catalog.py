"""
Static content catalogs for Lungcat.

Zero-cost content served whenever AI is skipped or fails: a mission
catalog and tiered motivation pools in English and Indonesian.
"""

from lungcat.models import Difficulty


# =============================================================================
# MISSIONS
# =============================================================================

# id -> (xp_reward, difficulty)
BASE_MISSIONS: dict[str, tuple[int, Difficulty]] = {
    "daily-checkin": (10, Difficulty.EASY),
    "breathing-relax": (15, Difficulty.EASY),
    "four-seven-eight-breathing": (14, Difficulty.EASY),
    "box-breathing": (13, Difficulty.EASY),
    "quiet-meditation": (20, Difficulty.MEDIUM),
    "body-scan": (18, Difficulty.EASY),
    "progressive-relaxation": (19, Difficulty.MEDIUM),
    "mood-check": (10, Difficulty.EASY),
    "seven-minute-workout": (25, Difficulty.MEDIUM),
    "gentle-yoga": (20, Difficulty.MEDIUM),
    "mindful-walk": (15, Difficulty.EASY),
    "climb-stairs": (22, Difficulty.MEDIUM),
    "ten-thousand-steps": (30, Difficulty.HARD),
    "hydrate-check": (15, Difficulty.EASY),
    "local-healthy-snack": (12, Difficulty.EASY),
    "no-sugar-hour": (18, Difficulty.MEDIUM),
    "fruit-break": (12, Difficulty.EASY),
    "read-wisdom": (15, Difficulty.EASY),
    "podcast-time": (15, Difficulty.EASY),
    "morning-journal": (18, Difficulty.EASY),
    "gratitude-note": (12, Difficulty.EASY),
    "say-thanks": (12, Difficulty.EASY),
    "family-time": (20, Difficulty.MEDIUM),
    "help-out": (22, Difficulty.MEDIUM),
}

ALWAYS_FIRST_MISSION = "daily-checkin"

MISSION_TEXT: dict[str, dict[str, tuple[str, str]]] = {
    "en": {
        "daily-checkin": ("Daily Check-in", "Check in today and keep your streak alive"),
        "breathing-relax": ("Relaxing Breath", "Take 5 slow, deep breaths when a craving hits"),
        "four-seven-eight-breathing": ("4-7-8 Breathing", "Inhale 4s, hold 7s, exhale 8s, three rounds"),
        "box-breathing": ("Box Breathing", "Breathe in a 4-4-4-4 box pattern for 2 minutes"),
        "quiet-meditation": ("Quiet Meditation", "Sit quietly and meditate for 10 minutes"),
        "body-scan": ("Body Scan", "Slowly notice each part of your body for 5 minutes"),
        "progressive-relaxation": ("Muscle Relaxation", "Tense and release each muscle group"),
        "mood-check": ("Mood Check", "Write down how you feel right now in one sentence"),
        "seven-minute-workout": ("7-Minute Workout", "Finish a quick 7-minute bodyweight workout"),
        "gentle-yoga": ("Gentle Yoga", "Do 15 minutes of easy yoga stretches"),
        "mindful-walk": ("Mindful Walk", "Take a 10-minute walk without your phone"),
        "climb-stairs": ("Take the Stairs", "Skip the elevator and climb stairs today"),
        "ten-thousand-steps": ("10,000 Steps", "Reach 10,000 steps before the day ends"),
        "hydrate-check": ("Stay Hydrated", "Drink 8 glasses of water today"),
        "local-healthy-snack": ("Healthy Snack", "Swap a cigarette break for a healthy snack"),
        "no-sugar-hour": ("No-Sugar Hours", "Avoid sugary drinks for the afternoon"),
        "fruit-break": ("Fruit Break", "Eat a piece of fruit when you want to smoke"),
        "read-wisdom": ("Read Something Good", "Read an inspiring page or article"),
        "podcast-time": ("Podcast Time", "Listen to a podcast episode on health"),
        "morning-journal": ("Morning Journal", "Write three lines about your goals today"),
        "gratitude-note": ("Gratitude Note", "List three things you are grateful for"),
        "say-thanks": ("Say Thanks", "Thank someone who supports your journey"),
        "family-time": ("Family Time", "Spend 30 smoke-free minutes with family"),
        "help-out": ("Help Out", "Do one kind thing for someone today"),
    },
    "id": {
        "daily-checkin": ("Check-in Harian", "Lakukan check-in hari ini dan jaga streak kamu"),
        "breathing-relax": ("Napas Santai", "Tarik 5 napas dalam saat keinginan merokok muncul"),
        "four-seven-eight-breathing": ("Napas 4-7-8", "Tarik 4 detik, tahan 7, buang 8, tiga kali"),
        "box-breathing": ("Napas Kotak", "Bernapas pola 4-4-4-4 selama 2 menit"),
        "quiet-meditation": ("Meditasi Tenang", "Duduk tenang dan meditasi selama 10 menit"),
        "body-scan": ("Body Scan", "Rasakan tiap bagian tubuh pelan-pelan selama 5 menit"),
        "progressive-relaxation": ("Relaksasi Otot", "Tegangkan lalu lemaskan tiap kelompok otot"),
        "mood-check": ("Cek Mood", "Tulis perasaanmu saat ini dalam satu kalimat"),
        "seven-minute-workout": ("Olahraga 7 Menit", "Selesaikan olahraga singkat 7 menit"),
        "gentle-yoga": ("Yoga Ringan", "Lakukan peregangan yoga ringan 15 menit"),
        "mindful-walk": ("Jalan Santai", "Jalan kaki 10 menit tanpa melihat HP"),
        "climb-stairs": ("Naik Tangga", "Pakai tangga, bukan lift, hari ini"),
        "ten-thousand-steps": ("10.000 Langkah", "Capai 10.000 langkah sebelum hari berakhir"),
        "hydrate-check": ("Minum Air", "Minum 8 gelas air putih hari ini"),
        "local-healthy-snack": ("Cemilan Sehat", "Ganti jeda rokok dengan cemilan sehat"),
        "no-sugar-hour": ("Jam Tanpa Gula", "Hindari minuman manis sepanjang sore"),
        "fruit-break": ("Jeda Buah", "Makan buah saat ingin merokok"),
        "read-wisdom": ("Baca Inspirasi", "Baca satu halaman atau artikel yang menginspirasi"),
        "podcast-time": ("Waktu Podcast", "Dengarkan satu episode podcast kesehatan"),
        "morning-journal": ("Jurnal Pagi", "Tulis tiga baris tentang tujuanmu hari ini"),
        "gratitude-note": ("Catatan Syukur", "Tulis tiga hal yang kamu syukuri"),
        "say-thanks": ("Ucapkan Terima Kasih", "Berterima kasih pada orang yang mendukungmu"),
        "family-time": ("Waktu Keluarga", "Habiskan 30 menit bebas rokok bersama keluarga"),
        "help-out": ("Bantu Sesama", "Lakukan satu kebaikan untuk orang lain hari ini"),
    },
}


# =============================================================================
# MOTIVATION POOLS
# =============================================================================

# Templates may use {name} and {streak}.
MOTIVATION_POOLS: dict[str, dict[str, list[str]]] = {
    "en": {
        "new_user": [
            "Every journey starts with a single day, {name}. You've already taken the hardest step.",
            "The first days are the toughest, and you're facing them. Keep going, {name}!",
            "Your lungs start healing within hours of your last cigarette. Today counts.",
            "Starting is brave. One smoke-free day at a time is all it takes.",
        ],
        "early_journey": [
            "{streak} days smoke-free, {name}! Your body is already thanking you.",
            "You've made it {streak} days. Cravings get weaker every time you say no.",
            "Day {streak} and counting. Your taste and smell are coming back to life.",
            "{streak} days strong. Small wins like this build a whole new you.",
        ],
        "milestone": [
            "{streak} days! That's a real milestone, {name}. Be proud of yourself.",
            "Milestone unlocked: {streak} smoke-free days. Your heart and lungs feel the difference.",
            "Look how far you've come: {streak} days without a cigarette. Incredible work!",
        ],
        "veteran": [
            "You're a true veteran of this journey, {name}. Your example inspires others.",
            "Months of smoke-free living have changed your health for good. Keep shining!",
            "You've proven you're stronger than any craving. Enjoy the freedom you've earned.",
        ],
        "recovery": [
            "A slip doesn't erase your progress, {name}. Today is a fresh start.",
            "Every comeback starts now. You've done it before, and you can do it again.",
            "Setbacks are part of the journey. What matters is that you're still here, trying.",
        ],
    },
    "id": {
        "new_user": [
            "Setiap perjalanan dimulai dari satu hari, {name}. Langkah tersulit sudah kamu ambil.",
            "Hari-hari pertama memang paling berat, dan kamu sedang menghadapinya. Semangat, {name}!",
            "Paru-parumu mulai pulih beberapa jam setelah rokok terakhir. Hari ini berarti.",
            "Memulai itu butuh keberanian. Satu hari bebas rokok sudah cukup untuk hari ini.",
        ],
        "early_journey": [
            "{streak} hari bebas rokok, {name}! Tubuhmu sudah berterima kasih.",
            "Sudah {streak} hari. Keinginan merokok makin lemah setiap kali kamu menolaknya.",
            "Hari ke-{streak} dan terus bertambah. Indra perasa dan penciumanmu mulai pulih.",
            "{streak} hari kuat. Kemenangan kecil seperti ini membentuk dirimu yang baru.",
        ],
        "milestone": [
            "{streak} hari! Ini pencapaian nyata, {name}. Banggalah pada dirimu.",
            "Pencapaian terbuka: {streak} hari bebas rokok. Jantung dan paru-parumu merasakannya.",
            "Lihat sejauh apa kamu melangkah: {streak} hari tanpa rokok. Luar biasa!",
        ],
        "veteran": [
            "Kamu sudah jadi veteran perjalanan ini, {name}. Teladanmu menginspirasi orang lain.",
            "Berbulan-bulan hidup bebas rokok telah mengubah kesehatanmu. Terus bersinar!",
            "Kamu sudah membuktikan dirimu lebih kuat dari keinginan apa pun. Nikmati kebebasanmu.",
        ],
        "recovery": [
            "Tergelincir tidak menghapus kemajuanmu, {name}. Hari ini awal yang baru.",
            "Setiap kebangkitan dimulai sekarang. Kamu pernah bisa, dan pasti bisa lagi.",
            "Kemunduran adalah bagian dari perjalanan. Yang penting kamu masih berjuang.",
        ],
    },
}

MILESTONE_DAYS = (7, 14, 30, 60, 90, 180, 365)

DEFAULT_NAME = {"en": "friend", "id": "teman"}


# =============================================================================
# TIPS
# =============================================================================

TIPS: dict[str, list[str]] = {
    "en": [
        "Drink a glass of water every time you feel the urge to smoke.",
        "Try 4-7-8 breathing to ride out stress without a cigarette.",
        "Brush your teeth right after meals to cut the post-meal craving.",
        "A 10-minute walk can replace your usual smoke break.",
        "Put the money you'd spend on cigarettes into a jar for a reward.",
        "Eat an orange to restore the vitamin C smoking used up.",
        "Keep gum or a toothpick handy for the hand-to-mouth habit.",
        "Avoid places and situations that usually trigger your smoking.",
    ],
    "id": [
        "Minum air putih setiap kali ingin merokok untuk membantu detoksifikasi.",
        "Lakukan napas dalam 4-7-8 untuk mengatasi stres tanpa rokok.",
        "Sikat gigi setelah makan untuk mengurangi keinginan merokok.",
        "Olahraga ringan 10 menit bisa menggantikan 'istirahat rokok'.",
        "Simpan uang rokok dalam celengan untuk hadiah diri sendiri.",
        "Konsumsi buah jeruk untuk vitamin C yang hilang akibat rokok.",
        "Gunakan tusuk gigi atau permen karet untuk menggantikan kebiasaan tangan ke mulut.",
        "Hindari tempat atau situasi yang biasa memicu keinginan merokok.",
    ],
}
