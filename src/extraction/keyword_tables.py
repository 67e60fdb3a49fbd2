# src/extraction/keyword_tables.py

"""Ordered keyword tables driving brand, flavor, type and validity checks.

Every table is evaluated top to bottom and the first hit wins, so more
specific entries must sit above generic ones.  Keywords are compared
against NFKC-normalised, lower-cased text, so write them in lower case.
Adding a brand or flavor is a data change here, never a code change.
"""

from src.models.product import ProteinType

BRAND_UNKNOWN = "その他"
FLAVOR_OTHER = "その他"

# (canonical brand, spellings)
BRAND_VARIANTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("マイプロテイン", ("マイプロテイン", "myprotein")),
    ("ゴールドジム", ("ゴールドジム", "gold's gym", "gold’s gym", "golds gym", "goldsgym")),
    ("エクスプロージョン", ("エクスプロージョン", "x-plosion", "xplosion")),
    ("オプティマム", ("オプティマムニュートリション", "オプティマム", "optimum nutrition", "optimum")),
    ("ダイマタイズ", ("ダイマタイズ", "dymatize")),
    ("マッスルテック", ("マッスルテック", "muscletech")),
    ("チャンピオン", ("チャンピオン", "champion")),
    ("beLEGEND", ("ビーレジェンド", "belegend", "be legend")),
    ("アルプロン", ("アルプロン", "alpron")),
    ("ウェリナ", ("ウェリナ", "welina")),
    ("ザバス", ("ザバス", "savas")),
    ("ハレオ", ("ハレオ", "haleo")),
    ("VALX", ("バルクス", "valx")),
    ("VITAS", ("バイタス", "vitas")),
    ("Kentai", ("ケンタイ", "kentai")),
    ("BSN", ("bsn",)),
    ("DNS", ("dns",)),
)

# (canonical flavor, synonyms)
FLAVOR_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("チョコレート", ("チョコ", "ショコラ", "ココア", "chocolate", "cocoa", "choco")),
    ("ミルクティー", ("ミルクティー", "milk tea")),
    ("ストロベリー", ("ストロベリー", "いちご", "イチゴ", "苺", "strawberry")),
    ("バニラ", ("バニラ", "vanilla")),
    ("バナナ", ("バナナ", "banana")),
    ("抹茶", ("抹茶", "matcha", "green tea")),
    ("コーヒー", ("コーヒー", "カフェオレ", "カフェラテ", "珈琲", "coffee", "cafe au lait")),
    ("ヨーグルト", ("ヨーグルト", "yogurt", "yoghurt")),
    (
        "フルーツ",
        (
            "ピーチ", "マンゴー", "パイン", "オレンジ", "グレープ", "レモン",
            "ベリー", "フルーツ", "peach", "mango", "pineapple", "orange",
            "lemon", "berry", "fruit",
        ),
    ),
    ("ミルク", ("ミルク風味", "ミルク味", "milk flavor")),
    (
        "プレーン",
        (
            "プレーン", "ナチュラル", "ノンフレーバー", "無味", "無香料",
            "plain", "natural", "unflavored", "non flavor",
        ),
    ),
)

# Precedence: soy > casein > wpi > plant > other > whey; whey when nothing
# matches.  Bare "大豆" is left out: allergen lines ("乳化剤（大豆由来）")
# appear on whey captions too.
PROTEIN_TYPE_KEYWORDS: tuple[tuple[ProteinType, tuple[str, ...]], ...] = (
    (ProteinType.SOY, ("ソイ", "大豆プロテイン", "大豆たんぱく", "大豆タンパク", "soy")),
    (ProteinType.CASEIN, ("カゼイン", "casein")),
    (ProteinType.WPI, ("wpi", "アイソレート", "isolate")),
    (
        ProteinType.PLANT,
        ("植物性", "ピープロテイン", "えんどう豆", "pea protein", "plant", "ヴィーガン", "vegan"),
    ),
    (ProteinType.OTHER, ("エッグプロテイン", "卵白", "egg protein")),
    (ProteinType.WHEY, ("ホエイ", "whey", "乳清", "wpc")),
)
DEFAULT_PROTEIN_TYPE = ProteinType.WHEY

# (protein grams, kcal) per serving when the text states neither
TYPE_NUTRITION_DEFAULTS: dict[ProteinType, tuple[float, float]] = {
    ProteinType.WHEY: (20.0, 110.0),
    ProteinType.SOY: (17.0, 115.0),
    ProteinType.CASEIN: (24.0, 110.0),
    ProteinType.WPI: (22.0, 105.0),
    ProteinType.PLANT: (17.0, 115.0),
    ProteinType.OTHER: (20.0, 110.0),
}

PROTEIN_KEYWORDS: tuple[str, ...] = (
    "プロテイン", "protein", "ホエイ", "whey", "ソイ", "soy",
    "カゼイン", "casein", "大豆プロテイン", "wpi", "wpc",
    "アイソレート", "isolate", "ピープロテイン", "植物性プロテイン",
)

# A deny hit always beats an allow hit.
EXCLUDED_KEYWORDS: tuple[str, ...] = (
    # accessories
    "シェイカー", "シェーカー", "shaker", "ボトル", "bottle", "容器",
    "スプーン", "ファンネル", "漏斗", "メジャー", "計量", "ケース", "ミキサー",
    # other supplements
    "クレアチン", "creatine", "hmb", "グルタミン", "bcaa", "eaa",
    "アミノ酸サプリ", "マルチビタミン", "ビタミン剤",
    "フィッシュオイル", "オメガ", "サプリメント", "青汁", "酵素", "コラーゲン",
    # processed food and drinks
    "プロテインバー", "クッキー", "ウエハース", "グミ", "ゼリー",
    "タブレット", "tablet", "錠剤", "カプセル", "capsule",
    "ドリンク", "飲料", "飲み物",
    # apparel and equipment
    "アパレル", "ウェア", "タオル", "tシャツ", "ダンベル", "バーベル", "器具", "マシン",
    # decorative goods
    "フラワー", "flower", "造花", "装飾", "インテリア", "デコレーション",
    "リース", "ブーケ", "アート",
    # media
    "dvd", "ブック", "マニュアル", "書籍",
    # bundles whose title weight is per bag
    "セット",
)

# (tag, keywords) surfaced on product cards
TAG_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("ダイエット", ("ダイエット", "減量", "脂肪燃焼")),
    ("筋トレ", ("筋肉", "筋トレ", "ボディビル")),
    ("美容", ("美容", "ヒアルロン酸")),
    ("国産", ("国産", "日本製")),
    ("無添加", ("無添加", "人工甘味料不使用")),
    ("初心者向け", ("初心者", "ビギナー")),
    ("本格", ("アスリート", "本格")),
)
