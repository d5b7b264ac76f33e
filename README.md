# dnkit

Building blocks for small convolutional and recurrent networks: reading
and writing binary `.weights` files, a few layers with their forward and
backward arithmetic, and the helpers behind image dreaming, character-level
text models and grid-based object detection.

## Installing

```
pip install dnkit
```

For running the tests:

```
pip install "dnkit[test]"
pytest
```

## What is inside

- `dnkit.utils`: command-line argument helpers that take what they find
  out of the argument list (`find_arg`, `find_int_arg`, `find_float_arg`,
  `find_str_arg`); `basecfg`, the file name of a path without directories
  or extension; text helpers (`strip`, `strip_char`, `split_str`,
  `parse_csv_line`, `count_fields`, `parse_fields`, `find_replace`);
  array statistics (`sum_array`, `mean_array`, `mean_arrays`,
  `variance_array`, `mse_array`, `mag_array`, `normalize_array`,
  `constrain`, `top_k`, `max_index`, `one_hot_encode`); and random helpers
  (`shuffle`, `sorta_shuffle`, `rand_int`, `rand_uniform`, `rand_normal`)
  that take an optional `random.Random`.
- `dnkit.weights`: weight files. `WeightsHeader` holds the version
  numbers and the count of images seen; `ConvolutionalWeights` and
  `ConnectedWeights` hold a layer's biases, filters or weights and
  batch-normalization statistics. `save_weights` and `load_weights`
  handle whole files (layers marked `dontload` are skipped on loading,
  and connected weights are transposed when the header says so);
  `save_weights_double` writes convolutional layers widened to twice
  their filters and inputs. The per-layer `read_*`/`write_*` functions,
  `read_header`, `write_header` and `transpose_matrix` are available too.
- `dnkit.layers`: `SoftmaxLayer` (with groups and temperature),
  `NormalizationLayer` (local response normalization across channels)
  and `RouteLayer` (concatenation of earlier layers' outputs), plus
  `softmax_array`.
- `dnkit.nightmare`: `calculate_loss`, which keeps only strong
  activations, `smooth`, which pulls each pixel toward its neighbours,
  `abs_mean`, and `output_name` for the image saved after each round.
- `dnkit.charrnn`: `get_rnn_data` builds one-hot input and target
  batches from random windows of a text; `sample_index` picks an index
  from a distribution; `perplexity` turns log2 probabilities into a
  perplexity.
- `dnkit.yolo`: `convert_yolo_detections` turns a grid of predictions
  into `Box` objects with per-class scores, and `format_yolo_detections`
  writes them as per-class `id score xmin ymin xmax ymax` lines.
  `VOC_NAMES` lists the twenty class names.

## Examples

```python
import numpy as np
from dnkit.layers import softmax_array

print(softmax_array(np.array([1.0, 2.0, 3.0]), 1.0))
```

```python
from dnkit.weights import ConvolutionalWeights, load_weights, save_weights

layer = ConvolutionalWeights(n=2, c=1, size=3, filters=range(18))
save_weights("tiny.weights", [layer], seen=64)

fresh = ConvolutionalWeights(n=2, c=1, size=3)
header = load_weights("tiny.weights", [fresh])
print(header.seen, fresh.filters[:4])
```

## What it does not do

dnkit does not read network description files, assemble a whole network
from layers, or run training or prediction end to end. It has no
convolutional, connected or recurrent layer arithmetic of its own (only
their weight blocks), does not load, draw or display images, and installs
no command-line program. The pieces here are meant to be called from your
own code.