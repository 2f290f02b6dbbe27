"""
Vision pipeline package:
- preprocess: image decoding and detector input normalization
- detector: ONNX YOLO inference engine
- decoder: raw YOLO head → confidence-filtered detections
- labels: class-index → ingredient name table
- render: box/label overlay drawing
- frame_processor: one photo end-to-end into a ProcessedImage
"""
