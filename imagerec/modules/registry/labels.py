"""Built-in class catalog used when a model ships without its own metadata."""

DEFAULT_CLASSES: tuple[str, ...] = (
    "cat", "dog", "bird", "car", "truck", "airplane", "boat", "train",
    "bicycle", "motorcycle", "person", "horse", "sheep", "cow", "elephant",
    "bear", "zebra", "giraffe", "backpack", "umbrella", "handbag", "tie",
    "suitcase", "frisbee", "skis", "snowboard", "sports ball", "kite",
    "baseball bat", "baseball glove", "skateboard", "surfboard", "tennis racket",
    "bottle", "wine glass", "cup", "fork", "knife", "spoon", "bowl",
    "banana", "apple", "sandwich", "orange", "broccoli", "carrot",
    "hot dog", "pizza", "donut", "cake", "chair", "couch", "potted plant",
)  # fmt: skip

CLASS_DESCRIPTIONS: dict[str, str] = {
    "cat": "A small domestic feline mammal",
    "dog": "A domestic canine companion animal",
    "bird": "A feathered, winged, bipedal animal",
    "car": "A four-wheeled motor vehicle",
    "truck": "A large motor vehicle for transporting goods",
    "airplane": "A powered flying vehicle with wings",
    "boat": "A watercraft designed for travel on water",
    "train": "A connected series of railway cars",
    "bicycle": "A two-wheeled vehicle powered by pedaling",
    "motorcycle": "A two-wheeled motor vehicle",
    "person": "A human being",
    "horse": "A large domesticated ungulate mammal",
    "sheep": "A woolly ruminant mammal",
    "cow": "A large domesticated bovine animal",
    "elephant": "A large mammal with a trunk",
    "bear": "A large omnivorous mammal",
    "zebra": "A black and white striped equine",
    "giraffe": "A tall African mammal with a long neck",
    # ImageNet
    "tench": "A European freshwater fish",
    "goldfish": "A small golden-colored fish",
    "great_white_shark": "A large predatory shark",
    "tiger_shark": "A large shark with distinctive markings",
    "hammerhead": "A shark with a flattened head",
    "electric_ray": "A cartilaginous fish that can produce electric discharge",
    "stingray": "A cartilaginous fish with a long tail",
    "cock": "A male domestic fowl",
    "hen": "A female domestic fowl",
    "ostrich": "A large flightless bird",
}


def default_classes(limit: int | None = None) -> list[str]:
    classes = list(DEFAULT_CLASSES)
    return classes if limit is None else classes[:limit]


def describe(class_name: str) -> str:
    return CLASS_DESCRIPTIONS.get(class_name, f"A {class_name} object or entity")


def humanize(class_name: str) -> str:
    """ImageNet-style identifiers use underscores; show them as words."""
    return class_name.replace("_", " ")
